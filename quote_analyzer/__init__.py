"""
Home-services quote analyzer.
"""
