"""Rail Complaint Desk - Backend Application"""
