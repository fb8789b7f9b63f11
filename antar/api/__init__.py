"""REST API for the habit tracker"""
