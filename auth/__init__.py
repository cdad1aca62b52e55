"""
auth — User authentication module.

Provides:
  • Cookie-backed login sessions (``SessionManager`` / ``auth``)
  • Password hashing (bcrypt)
  • User lookup and creation (``UserRepository`` / ``UserService``)
"""
