"""
Response helpers package.
"""
