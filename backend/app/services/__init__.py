"""Rail Complaint Desk - Services"""
