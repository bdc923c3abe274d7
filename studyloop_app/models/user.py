from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import generate_password_hash

from ..db_instance import db


class User(UserMixin, db.Model):
    """Application user.

    ``user_id`` is the opaque identifier handed out by the identity provider;
    the study engine only ever reads it from the authenticated session.
    """

    __tablename__ = 'users'

    user_id = db.Column(db.String(255), primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False, default='')
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def get_id(self):
        return str(self.user_id)

    def __repr__(self):
        return f'<User {self.username}>'
