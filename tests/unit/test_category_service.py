"""
Category Service Unit Tests
"""

import pytest

from services import category_service
from services.task_service import task_service
from utils.errors import ConflictError, NotFoundError, ValidationError


class TestCategoryService:

    def test_create_and_list(self, test_user):
        category_service.create_category(test_user.id, {'name': 'Work', 'color': '#3b82f6'})
        category_service.create_category(test_user.id, {'name': 'Home'})
        names = [c.name for c in category_service.get_categories(test_user.id)]
        assert names == ['Home', 'Work']

    def test_name_is_unique_per_user(self, test_user, other_user):
        category_service.create_category(test_user.id, {'name': 'Work'})
        with pytest.raises(ConflictError):
            category_service.create_category(test_user.id, {'name': 'work'})
        # same name is fine for someone else
        assert category_service.create_category(other_user.id, {'name': 'Work'}).id

    def test_name_required_and_bounded(self, test_user):
        with pytest.raises(ValidationError):
            category_service.create_category(test_user.id, {'name': ''})
        with pytest.raises(ValidationError):
            category_service.create_category(test_user.id, {'name': 'x' * 51})

    def test_foreign_category_not_found(self, test_user, other_user):
        category = category_service.create_category(other_user.id, {'name': 'Private'})
        with pytest.raises(NotFoundError):
            category_service.get_category(test_user.id, category.id)
        with pytest.raises(NotFoundError):
            category_service.update_category(test_user.id, category.id, {'name': 'Mine now'})

    def test_delete_keeps_tasks_uncategorized(self, db_session, test_user):
        category = category_service.create_category(test_user.id, {'name': 'Temp'})
        task = task_service.create_task(test_user.id, {'title': 'Keep me', 'category_id': category.id})

        category_service.delete_category(test_user.id, category.id)

        db_session.expire_all()
        assert task_service.get_task(test_user.id, task.id).category_id is None

    def test_counts_and_statistics(self, test_user):
        category = category_service.create_category(test_user.id, {'name': 'Work'})
        task_service.create_task(test_user.id, {'title': 'A', 'category_id': category.id})
        task_service.create_task(test_user.id, {'title': 'B', 'category_id': category.id, 'status': 'completed'})

        assert category_service.get_category_task_count(test_user.id, category.id) == 2
        stats = category_service.get_category_statistics(test_user.id)
        assert stats == [{
            'category_id': category.id,
            'name': 'Work',
            'task_count': 2,
            'completed_count': 1,
            'completion_rate': 0.5,
        }]

    def test_search_matches_description(self, test_user):
        category_service.create_category(test_user.id, {'name': 'Errands', 'description': 'Groceries and post'})
        category_service.create_category(test_user.id, {'name': 'Work'})
        assert [c.name for c in category_service.search_categories(test_user.id, 'grocer')] == ['Errands']
        assert len(category_service.search_categories(test_user.id, '')) == 2

    def test_paged(self, test_user):
        for name in ('A', 'B', 'C'):
            category_service.create_category(test_user.id, {'name': name})
        page = category_service.get_categories_paged(test_user.id, page=2, page_size=2)
        assert [c.name for c in page.items] == ['C']
        assert page.total == 3
