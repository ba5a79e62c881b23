from libraryhub.models.category import Category
from libraryhub.extensions import db


class CategoryRepo:
    @staticmethod
    def list_all():
        return Category.query.order_by(Category.name.asc()).all()

    @staticmethod
    def get(category_id: int):
        return db.session.get(Category, category_id)

    @staticmethod
    def get_by_name(name: str):
        return Category.query.filter(db.func.lower(Category.name) == name.lower()).first()

    @staticmethod
    def create(category: Category):
        db.session.add(category)
        db.session.commit()
        return category
