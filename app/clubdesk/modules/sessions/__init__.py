"""
Training sessions offered to players, managed from the admin dashboard.
"""
