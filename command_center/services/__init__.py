"""
Services package initialization
"""
