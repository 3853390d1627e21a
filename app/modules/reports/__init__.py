"""Reports module"""
