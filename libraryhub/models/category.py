from libraryhub.extensions import db


class Category(db.Model):
    __tablename__ = "categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)

    def to_dict(self):
        return {"id": self.id, "name": self.name}


# names are unique regardless of case, matching CategoryRepo.get_by_name
db.Index("uq_categories_name_lower", db.func.lower(Category.name), unique=True)
