"""Core infrastructure: database, errors"""
