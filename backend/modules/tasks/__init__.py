"""
Tasks module.

Background work triggered over HTTP: the email job worker behind the
task queue and the daily digest behind the cron scheduler.
"""
