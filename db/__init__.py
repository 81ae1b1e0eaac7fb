"""
db/ - Database Layer
====================
Owns the single shared database connection (Postgres or MySQL), runs raw
and parameterized queries returning structured rows, and applies the
versioned schema migrations.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
