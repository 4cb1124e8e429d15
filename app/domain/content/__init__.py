"""
Content bounded context: domain layer.

Analysis reports and monthly swing-trading trainings.
"""
