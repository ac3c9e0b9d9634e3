"""PostgreSQL access"""
