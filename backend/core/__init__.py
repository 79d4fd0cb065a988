"""Business logic: IP pools, allocation, project and device management"""
