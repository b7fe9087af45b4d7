"""
Core Package - Calculators, Clinical Rules, Store, Navigation and Reports
"""
