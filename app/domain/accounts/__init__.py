"""
Accounts bounded context: domain layer.

Users, roles and service subscriptions (full and trial).
"""
