"""
Convert Gateway service.
"""
