"""
Notifications bounded context: domain layer.

In-app notifications, deferred delivery jobs and message rendering
for the email and Telegram channels.
"""
