#!/usr/bin/env python3
"""
Seed a demo user with categories, tags and tasks for manual testing.
Safe to run repeatedly: the user is reused when it already exists.
"""

import sys
import os
from datetime import timedelta

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from models import utc_today
from services import auth_service, category_service
from services.task_service import task_service
from utils.errors import TaskTrackerError

DEMO_EMAIL = 'demo@tasktracker.com'
DEMO_PASSWORD = 'DemoPass123'

DEMO_CATEGORIES = [
    ('Work', 'Office and client work', '#3b82f6'),
    ('Personal', 'Errands and life admin', '#10b981'),
    ('Learning', 'Courses and reading', '#f59e0b'),
]

# title, category, priority, due in days (None = no due date), status
DEMO_TASKS = [
    ('Prepare quarterly report', 'Work', 'high', 2, 'in_progress'),
    ('Reply to client emails', 'Work', 'medium', 0, 'todo'),
    ('Fix login page bug', 'Work', 'critical', -1, 'todo'),
    ('Book dentist appointment', 'Personal', 'low', 5, 'not_started'),
    ('Pay electricity bill', 'Personal', 'medium', -3, 'completed'),
    ('Finish SQLAlchemy course chapter', 'Learning', 'medium', None, 'todo'),
]


def seed_demo_data():
    app = create_app()

    with app.app_context():
        user = auth_service.find_user(DEMO_EMAIL)
        if user:
            print(f"✅ Demo user already exists (ID: {user.id})")
            return user

        user = auth_service.register_user({
            'username': 'demo',
            'email': DEMO_EMAIL,
            'password': DEMO_PASSWORD,
            'first_name': 'Demo',
            'last_name': 'User',
        })

        categories = {}
        for name, description, color in DEMO_CATEGORIES:
            category = category_service.create_category(
                user.id, {'name': name, 'description': description, 'color': color}
            )
            categories[name] = category.id

        urgent = task_service.create_tag(user.id, 'urgent')
        for title, category, priority, due_in, status in DEMO_TASKS:
            data = {
                'title': title,
                'category_id': categories[category],
                'priority': priority,
                'status': status,
            }
            if due_in is not None:
                data['due_date'] = (utc_today() + timedelta(days=due_in)).isoformat()
            if priority in ('high', 'critical'):
                data['tag_ids'] = [urgent.id]
            task_service.create_task(user.id, data)

        print("✅ Demo data created successfully!")
        print(f"   Email: {DEMO_EMAIL}")
        print(f"   Password: {DEMO_PASSWORD}")
        print(f"   Tasks: {len(DEMO_TASKS)}")
        return user


if __name__ == '__main__':
    try:
        seed_demo_data()
    except TaskTrackerError as e:
        print(f"❌ Error seeding demo data: {e.message}")
        sys.exit(1)
