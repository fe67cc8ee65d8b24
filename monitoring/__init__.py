"""
Monitoring package
"""
