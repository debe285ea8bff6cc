"""
Services package.
Remote order API clients, alert output channels and order exporters.
"""
