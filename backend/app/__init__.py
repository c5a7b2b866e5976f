"""
Rescue Case Service Backend
===========================

This is the Python package for the backend API.

HOW IT'S ORGANIZED:
------------------
- models/    = Data structures (what does a case look like?)
- services/  = Workers (store cases, enforce one pending case per device)
- routers/   = API endpoints (the doors into our app)
- utils/     = Small validation helpers
- main.py    = Puts it all together and starts the server
"""
