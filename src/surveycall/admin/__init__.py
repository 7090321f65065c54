"""
Admin listing package.
"""
