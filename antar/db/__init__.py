"""PostgreSQL access: connection pool and query modules"""
