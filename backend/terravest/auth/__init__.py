"""
Authentication - HS256 bearer tokens and role dependencies
"""
