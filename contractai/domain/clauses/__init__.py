"""Clause domain - AI drafting of clause descriptions"""
