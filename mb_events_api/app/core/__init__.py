"""
Configuration, persistence, security, logging and the error taxonomy.
"""
