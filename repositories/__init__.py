"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific domain entity.
Repositories receive a ConnectionManager, read Rows and return domain model objects.
"""
