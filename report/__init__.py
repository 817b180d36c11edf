"""
Report package: render correlated comments for the terminal and for export.
"""
