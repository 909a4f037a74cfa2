"""
Terminal presentation helpers - result reports and the interviewer guide.
"""
