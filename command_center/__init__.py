"""
NGO Command Center - conversational command pipeline
"""
__version__ = "1.0.0"
