from sqlalchemy import (
    Column, Integer, String, DateTime, Date, Boolean, ForeignKey, Text, Float,
    UniqueConstraint, CheckConstraint, JSON,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

Base = declarative_base()


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    username = Column(String(30), unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # Profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    bio = Column(Text, nullable=True)
    profile_image_url = Column(String, nullable=True)
    location = Column(String(255), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    # Soft delete flag; users are never hard-deleted
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    reviews = relationship("Review", back_populates="user")
    checkins = relationship("Checkin", back_populates="user")
    badges = relationship("UserBadge", back_populates="user")


class Venue(Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    state = Column(String(100), nullable=True)
    country = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    website_url = Column(String, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=True)
    # concert_hall, club, arena, outdoor, bar, theater, stadium, other
    venue_type = Column(String(50), nullable=True)
    image_url = Column(String, nullable=True)
    # Derived from reviews and rated check-ins
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    # External data source fields
    foursquare_place_id = Column(String(255), nullable=True, unique=True)
    setlistfm_venue_id = Column(String(255), nullable=True, unique=True)
    # "user_created", "foursquare", "setlistfm"
    source = Column(String(50), nullable=False, default="user_created")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    events = relationship("Event", back_populates="venue")


class Band(Base):
    __tablename__ = "bands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    genre = Column(String(100), nullable=True, index=True)
    formed_year = Column(Integer, nullable=True)
    website_url = Column(String, nullable=True)
    spotify_url = Column(String, nullable=True)
    instagram_url = Column(String, nullable=True)
    facebook_url = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    hometown = Column(String(255), nullable=True)
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    musicbrainz_id = Column(String(255), nullable=True, unique=True)
    # "user_created", "musicbrainz"
    source = Column(String(50), nullable=False, default="user_created")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    events = relationship("Event", back_populates="band")


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"),
                      nullable=True, index=True)
    band_id = Column(Integer, ForeignKey("bands.id", ondelete="CASCADE"),
                     nullable=True, index=True)
    rating = Column(Integer, nullable=False)
    title = Column(String(255), nullable=True)
    content = Column(Text, nullable=True)
    event_date = Column(Date, nullable=True)
    image_urls = Column(JSON, nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    helpful_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="reviews")
    venue = relationship("Venue")
    band = relationship("Band")

    __table_args__ = (
        UniqueConstraint('user_id', 'venue_id', name='uq_review_user_venue'),
        UniqueConstraint('user_id', 'band_id', name='uq_review_user_band'),
        CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating'),
        # Exactly one of venue_id / band_id
        CheckConstraint(
            '(venue_id IS NULL AND band_id IS NOT NULL) OR '
            '(venue_id IS NOT NULL AND band_id IS NULL)',
            name='ck_review_single_target'),
    )


class ReviewHelpfulness(Base):
    __tablename__ = "review_helpfulness"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    review_id = Column(Integer, ForeignKey("reviews.id", ondelete="CASCADE"),
                       nullable=False, index=True)
    is_helpful = Column(Boolean, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint(
        'user_id', 'review_id', name='uq_review_helpfulness'),)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    band_id = Column(Integer, ForeignKey("bands.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    event_date = Column(Date, nullable=False, index=True)
    event_name = Column(String(255), nullable=True)
    created_by_user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    venue = relationship("Venue", back_populates="events")
    band = relationship("Band", back_populates="events")
    checkins = relationship("Checkin", back_populates="event")

    # One show per venue, band and date
    __table_args__ = (UniqueConstraint(
        'venue_id', 'band_id', 'event_date', name='uq_event'),)


class Checkin(Base):
    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"),
                      nullable=False, index=True)
    venue_rating = Column(Integer, nullable=True)
    band_rating = Column(Integer, nullable=True)
    review_text = Column(Text, nullable=True)
    image_urls = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="checkins")
    event = relationship("Event", back_populates="checkins")
    toasts = relationship(
        "CheckinToast", back_populates="checkin", cascade="all, delete-orphan")
    comments = relationship(
        "CheckinComment", back_populates="checkin", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('user_id', 'event_id', name='uq_user_checkin'),
        CheckConstraint(
            'venue_rating IS NULL OR (venue_rating >= 1 AND venue_rating <= 5)',
            name='ck_checkin_venue_rating'),
        CheckConstraint(
            'band_rating IS NULL OR (band_rating >= 1 AND band_rating <= 5)',
            name='ck_checkin_band_rating'),
    )


class CheckinToast(Base):
    __tablename__ = "checkin_toasts"

    id = Column(Integer, primary_key=True, index=True)
    checkin_id = Column(Integer, ForeignKey(
        "checkins.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    checkin = relationship("Checkin", back_populates="toasts")
    user = relationship("User")

    # A user can only toast a check-in once
    __table_args__ = (UniqueConstraint(
        'checkin_id', 'user_id', name='uq_user_toast'),)


class CheckinComment(Base):
    __tablename__ = "checkin_comments"

    id = Column(Integer, primary_key=True, index=True)
    checkin_id = Column(Integer, ForeignKey(
        "checkins.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)
    comment_text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), index=True)

    checkin = relationship("Checkin", back_populates="comments")
    user = relationship("User")


class Badge(Base):
    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    icon_url = Column(String, nullable=True)
    # review_count, venue_explorer, music_lover, event_attendance, helpful_count
    badge_type = Column(String(50), nullable=False, index=True)
    requirement_value = Column(Integer, nullable=False)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint(
        'badge_type', 'requirement_value', name='uq_badge_threshold'),)


class UserBadge(Base):
    __tablename__ = "user_badges"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)
    badge_id = Column(Integer, ForeignKey(
        "badges.id", ondelete="CASCADE"), nullable=False, index=True)
    earned_at = Column(DateTime(timezone=True), server_default=func.now())

    user = relationship("User", back_populates="badges")
    badge = relationship("Badge")

    __table_args__ = (UniqueConstraint(
        'user_id', 'badge_id', name='uq_user_badge'),)


class UserFollower(Base):
    __tablename__ = "user_followers"

    id = Column(Integer, primary_key=True, index=True)
    follower_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)
    following_id = Column(Integer, ForeignKey(
        "users.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint(
        'follower_id', 'following_id', name='uq_user_follower'),)
