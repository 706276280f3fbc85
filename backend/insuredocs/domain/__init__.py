"""Domain logic independent of persistence and transport"""
