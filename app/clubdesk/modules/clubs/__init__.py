"""
Clubs: the club directory.

- Admin pages under /admin/clubs
- JSON API under /api/v1/clubs (reads are public, writes need an admin token)
"""
