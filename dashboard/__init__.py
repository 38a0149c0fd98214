# dashboard/__init__.py

"""HTTP API Energy Tracker Analytics"""
