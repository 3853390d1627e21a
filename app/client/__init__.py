"""Client-side helpers for talking to the biodata API"""
