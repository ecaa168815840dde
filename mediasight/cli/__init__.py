"""
Click command groups for the mediasight entry point.
"""
