"""
Accomplishments module ("share an achievement").

Same approval policy as jobs, but a rejected accomplishment is deleted rather
than deactivated.
"""
