"""
QR Drop - Test Suite
"""
