"""
Recording relay package.
"""
