"""SQLite persistence for users, bookings and reviews"""
