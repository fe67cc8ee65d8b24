"""
Rollout core package
"""
