"""
Backend Scripts Module

This module contains utility scripts for database operations and maintenance.

Available scripts:
    - seed_data.py: Permission registry, demo organization, users and tickets
    
Usage:
    python -m scripts.seed_data
"""

