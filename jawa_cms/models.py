from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from .utils import utc_now_naive

db = SQLAlchemy()

SINGLETON_ID = 1
DEFAULT_GRADIENT = 'from-[#2C14C7] via-[#1B1B3A] to-[#02010A]'


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


class Service(db.Model):
    __tablename__ = 'services'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False, index=True)  # join key for pricing_plans.category
    description = db.Column(db.Text, nullable=False)
    details = db.Column(db.Text)
    image = db.Column(db.String(500))
    gradient = db.Column(db.String(200), default=DEFAULT_GRADIENT)


class Project(db.Model):
    __tablename__ = 'projects'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    category = db.Column(db.String(120))
    tag = db.Column(db.String(120))
    image = db.Column(db.String(500))
    github_url = db.Column(db.String(500))
    figma_url = db.Column(db.String(500))
    technologies = db.Column(db.Text)


class PricingPlan(db.Model):
    __tablename__ = 'pricing_plans'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    price = db.Column(db.String(50), nullable=False)
    currency = db.Column(db.String(10), default='€')
    features = db.Column(db.JSON, default=list)
    is_popular = db.Column(db.Boolean, default=False)
    category = db.Column(db.String(200), index=True)  # free text, expected to match a services.title
    button_text = db.Column(db.String(100), default='Commander')
    button_link = db.Column(db.String(500), default='/contact')


class ProcessStep(db.Model):
    __tablename__ = 'process_steps'
    id = db.Column(db.Integer, primary_key=True)
    number = db.Column(db.String(10), nullable=False)
    label = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    tags = db.Column(db.JSON, default=list)


class FAQ(db.Model):
    __tablename__ = 'faq'
    id = db.Column(db.Integer, primary_key=True)
    question = db.Column(db.Text, nullable=False)
    answer = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(120))
    order = db.Column('order', db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)


class Testimonial(db.Model):
    __tablename__ = 'testimonials'
    id = db.Column(db.Integer, primary_key=True)
    quote = db.Column(db.Text, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(200))
    company = db.Column(db.String(200))
    email = db.Column(db.String(200))
    avatar_url = db.Column(db.String(500))
    approved = db.Column(db.Boolean, nullable=False, default=False, index=True)
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)


class TeamMember(db.Model):
    __tablename__ = 'team_members'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(db.String(200), nullable=False)
    bio = db.Column(db.Text)
    photo_url = db.Column(db.String(500))
    email = db.Column(db.String(200))
    social_links = db.Column(db.JSON, default=dict)
    skills = db.Column(db.JSON, default=list)
    quote = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)


class TrustedCompany(db.Model):
    __tablename__ = 'trusted_companies'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    logo_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)


class BlogCategory(db.Model):
    __tablename__ = 'blog_categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    posts = db.relationship('BlogPost', backref='category', lazy=True)


class BlogPost(db.Model):
    __tablename__ = 'blog_posts'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(300), nullable=False)
    slug = db.Column(db.String(300), unique=True, nullable=False)
    excerpt = db.Column(db.Text)
    content = db.Column(db.Text)
    cover_image = db.Column(db.String(500))
    category_id = db.Column(db.Integer, db.ForeignKey('blog_categories.id'), index=True)
    is_published = db.Column(db.Boolean, nullable=False, default=False, index=True)
    published_at = db.Column(db.DateTime, index=True)
    author = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=utc_now_naive)
    updated_at = db.Column(db.DateTime, default=utc_now_naive, onupdate=utc_now_naive)
    comments = db.relationship(
        'BlogComment',
        backref='post',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='BlogComment.created_at.desc()',
    )


class BlogComment(db.Model):
    __tablename__ = 'blog_comments'
    id = db.Column(db.Integer, primary_key=True)
    post_id = db.Column(db.Integer, db.ForeignKey('blog_posts.id', ondelete='CASCADE'), nullable=False, index=True)
    author_name = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utc_now_naive, index=True)


class NewsletterSubscriber(db.Model):
    __tablename__ = 'newsletter_subscribers'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(320), unique=True, nullable=False)
    name = db.Column(db.String(200))
    subscribed_at = db.Column(db.DateTime, default=utc_now_naive, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    source = db.Column(db.String(80), default='website_contact')


class CompanyInfo(db.Model):
    __tablename__ = 'company_info'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200))
    description = db.Column(db.Text)
    email = db.Column(db.String(200))
    phone = db.Column(db.String(50))
    address = db.Column(db.String(300))
    address_details = db.Column(db.String(300))
    social_linkedin = db.Column(db.String(500))
    social_instagram = db.Column(db.String(500))
    social_behance = db.Column(db.String(500))
    social_dribbble = db.Column(db.String(500))
    social_twitter = db.Column(db.String(500))
    hero_image_url = db.Column(db.String(500))


class AboutSection(db.Model):
    __tablename__ = 'about_section'
    id = db.Column(db.Integer, primary_key=True)
    image_url = db.Column(db.String(500))
    satisfaction_score = db.Column(db.String(50))
    satisfaction_text = db.Column(db.String(300))
    intro_title = db.Column(db.String(300))
    intro_text = db.Column(db.Text)
    history_text = db.Column(db.Text)
    mission_text = db.Column(db.Text)
    vision_text = db.Column(db.Text)
