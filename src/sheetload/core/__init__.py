"""
Core domain: data models, validation rules, and the rule engine.
"""
