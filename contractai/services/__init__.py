"""Shared services used across domains"""
