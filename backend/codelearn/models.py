from __future__ import annotations
from sqlalchemy import Boolean, CheckConstraint, Column, String, DateTime, Integer, Text, UniqueConstraint
from .db import Base
from .timeutil import utcnow


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username; it doubles as the user id everywhere else
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	# One row per issued token (jti); deleting the row revokes the token
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=utcnow, nullable=False)


class Question(Base):
	__tablename__ = "questions"
	__table_args__ = (
		CheckConstraint("difficulty_score >= 1 AND difficulty_score <= 100", name="valid_difficulty_score"),
	)
	id = Column(String(32), primary_key=True)
	code_snippet = Column(Text, nullable=False)
	question_text = Column(Text, nullable=False)
	correct_answer = Column(Text, nullable=False)
	explanation = Column(Text, nullable=True)
	difficulty = Column(String(16), nullable=False)
	language = Column(String(16), nullable=False, index=True)
	concepts_json = Column(Text, nullable=False, default="[]")  # JSON array of tags
	difficulty_score = Column(Integer, nullable=False, index=True)
	created_by = Column(String(128), nullable=True)
	created_at = Column(DateTime, default=utcnow, nullable=False)


class UserProgress(Base):
	__tablename__ = "user_progress"
	# Append-only attempt log
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(String(128), nullable=False, index=True)
	question_id = Column(String(32), nullable=False)
	user_answer = Column(Text, nullable=False)
	is_correct = Column(Boolean, nullable=False)
	time_spent_seconds = Column(Integer, nullable=True)
	hints_used = Column(Integer, default=0, nullable=False)
	attempted_at = Column(DateTime, default=utcnow, nullable=False, index=True)


class UserSkill(Base):
	__tablename__ = "user_skills"
	__table_args__ = (
		UniqueConstraint("user_id", "language", name="uq_user_skills_user_language"),
		CheckConstraint("current_difficulty_score >= 1 AND current_difficulty_score <= 100", name="valid_current_difficulty"),
	)
	id = Column(Integer, primary_key=True, autoincrement=True)
	user_id = Column(String(128), nullable=False, index=True)
	language = Column(String(16), nullable=False)
	current_difficulty_score = Column(Integer, default=10, nullable=False)
	total_questions_attempted = Column(Integer, default=0, nullable=False)
	correct_answers = Column(Integer, default=0, nullable=False)
	current_streak = Column(Integer, default=0, nullable=False)
	best_streak = Column(Integer, default=0, nullable=False)
	last_practiced_at = Column(DateTime, nullable=True)
	updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class LearningSession(Base):
	__tablename__ = "learning_sessions"
	__table_args__ = (
		CheckConstraint("ended_at IS NULL OR ended_at >= started_at", name="valid_session_dates"),
	)
	id = Column(String(32), primary_key=True)
	user_id = Column(String(128), nullable=False, index=True)
	language = Column(String(16), nullable=False)
	started_at = Column(DateTime, default=utcnow, nullable=False)
	ended_at = Column(DateTime, nullable=True)
	questions_attempted = Column(Integer, default=0, nullable=False)
	questions_correct = Column(Integer, default=0, nullable=False)
