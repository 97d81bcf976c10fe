"""
Adapters Django: ORM, API JSON, Unit of Work y eventos.
"""
