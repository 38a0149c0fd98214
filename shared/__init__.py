# shared/__init__.py

"""Pydantic схемы запросов и ответов API"""
