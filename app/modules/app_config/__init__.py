"""Public application configuration"""
