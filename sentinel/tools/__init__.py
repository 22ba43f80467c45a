"""
분석 도구
"""
