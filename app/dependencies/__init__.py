"""
FastAPI dependency providers: repositories, services and the current member
"""
