#!/usr/bin/env python3
"""
Streamlit entry point: ``streamlit run main.py``
"""

from water_rates.ui.main import main

if __name__ == "__main__":
    main()
