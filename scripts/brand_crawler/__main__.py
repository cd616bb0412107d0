#!/usr/bin/env python3
"""
Module entry point for scripts.brand_crawler
Enables: python -m scripts.brand_crawler
"""
import sys

from .driver import main

if __name__ == "__main__":
    sys.exit(main())
