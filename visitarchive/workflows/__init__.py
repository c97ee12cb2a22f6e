"""
Workflows Module
"""
