"""
LogiCRM 中间件
"""
