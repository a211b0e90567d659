"""Configuration and HTTP helpers"""
