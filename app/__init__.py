"""HTTP application"""
