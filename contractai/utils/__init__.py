"""Storage and other small helpers"""
