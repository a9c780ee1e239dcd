"""Job board backend: users, jobs, applications and resumes over a relational store with a read-through cache."""
