# Overview: Flask extension instances shared by models and services.

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
