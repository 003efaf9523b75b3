"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('users',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('email', sa.String(length=255), nullable=False),
                    sa.Column('username', sa.String(length=30), nullable=False),
                    sa.Column('password_hash', sa.String(), nullable=False),
                    sa.Column('first_name', sa.String(length=100), nullable=True),
                    sa.Column('last_name', sa.String(length=100), nullable=True),
                    sa.Column('bio', sa.Text(), nullable=True),
                    sa.Column('profile_image_url', sa.String(), nullable=True),
                    sa.Column('location', sa.String(length=255), nullable=True),
                    sa.Column('date_of_birth', sa.Date(), nullable=True),
                    sa.Column('is_verified', sa.Boolean(), nullable=False,
                              server_default=sa.false()),
                    sa.Column('is_active', sa.Boolean(), nullable=False,
                              server_default=sa.true()),
                    *_timestamps(),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index('ix_users_id', 'users', ['id'])
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_username', 'users', ['username'], unique=True)

    op.create_table('venues',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('address', sa.String(length=255), nullable=True),
                    sa.Column('city', sa.String(length=100), nullable=True),
                    sa.Column('state', sa.String(length=100), nullable=True),
                    sa.Column('country', sa.String(length=100), nullable=True),
                    sa.Column('postal_code', sa.String(length=20), nullable=True),
                    sa.Column('latitude', sa.Float(), nullable=True),
                    sa.Column('longitude', sa.Float(), nullable=True),
                    sa.Column('website_url', sa.String(), nullable=True),
                    sa.Column('phone', sa.String(length=50), nullable=True),
                    sa.Column('email', sa.String(length=255), nullable=True),
                    sa.Column('capacity', sa.Integer(), nullable=True),
                    sa.Column('venue_type', sa.String(length=50), nullable=True),
                    sa.Column('image_url', sa.String(), nullable=True),
                    sa.Column('average_rating', sa.Float(), nullable=False,
                              server_default='0'),
                    sa.Column('total_reviews', sa.Integer(), nullable=False,
                              server_default='0'),
                    sa.Column('is_active', sa.Boolean(), nullable=False,
                              server_default=sa.true()),
                    sa.Column('foursquare_place_id', sa.String(length=255), nullable=True),
                    sa.Column('setlistfm_venue_id', sa.String(length=255), nullable=True),
                    sa.Column('source', sa.String(length=50), nullable=False,
                              server_default='user_created'),
                    *_timestamps(),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('foursquare_place_id'),
                    sa.UniqueConstraint('setlistfm_venue_id')
                    )
    op.create_index('ix_venues_id', 'venues', ['id'])
    op.create_index('ix_venues_name', 'venues', ['name'])
    op.create_index('ix_venues_city', 'venues', ['city'])

    op.create_table('bands',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(length=255), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('genre', sa.String(length=100), nullable=True),
                    sa.Column('formed_year', sa.Integer(), nullable=True),
                    sa.Column('website_url', sa.String(), nullable=True),
                    sa.Column('spotify_url', sa.String(), nullable=True),
                    sa.Column('instagram_url', sa.String(), nullable=True),
                    sa.Column('facebook_url', sa.String(), nullable=True),
                    sa.Column('image_url', sa.String(), nullable=True),
                    sa.Column('hometown', sa.String(length=255), nullable=True),
                    sa.Column('average_rating', sa.Float(), nullable=False,
                              server_default='0'),
                    sa.Column('total_reviews', sa.Integer(), nullable=False,
                              server_default='0'),
                    sa.Column('is_active', sa.Boolean(), nullable=False,
                              server_default=sa.true()),
                    sa.Column('musicbrainz_id', sa.String(length=255), nullable=True),
                    sa.Column('source', sa.String(length=50), nullable=False,
                              server_default='user_created'),
                    *_timestamps(),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('musicbrainz_id')
                    )
    op.create_index('ix_bands_id', 'bands', ['id'])
    op.create_index('ix_bands_name', 'bands', ['name'])
    op.create_index('ix_bands_genre', 'bands', ['genre'])

    op.create_table('reviews',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('venue_id', sa.Integer(), nullable=True),
                    sa.Column('band_id', sa.Integer(), nullable=True),
                    sa.Column('rating', sa.Integer(), nullable=False),
                    sa.Column('title', sa.String(length=255), nullable=True),
                    sa.Column('content', sa.Text(), nullable=True),
                    sa.Column('event_date', sa.Date(), nullable=True),
                    sa.Column('image_urls', sa.JSON(), nullable=True),
                    sa.Column('is_verified', sa.Boolean(), nullable=False,
                              server_default=sa.false()),
                    sa.Column('helpful_count', sa.Integer(), nullable=False,
                              server_default='0'),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['venue_id'], ['venues.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['band_id'], ['bands.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('user_id', 'venue_id', name='uq_review_user_venue'),
                    sa.UniqueConstraint('user_id', 'band_id', name='uq_review_user_band'),
                    sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_review_rating'),
                    sa.CheckConstraint(
                        '(venue_id IS NULL AND band_id IS NOT NULL) OR '
                        '(venue_id IS NOT NULL AND band_id IS NULL)',
                        name='ck_review_single_target')
                    )
    op.create_index('ix_reviews_id', 'reviews', ['id'])
    op.create_index('ix_reviews_user_id', 'reviews', ['user_id'])
    op.create_index('ix_reviews_venue_id', 'reviews', ['venue_id'])
    op.create_index('ix_reviews_band_id', 'reviews', ['band_id'])

    op.create_table('review_helpfulness',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('review_id', sa.Integer(), nullable=False),
                    sa.Column('is_helpful', sa.Boolean(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['review_id'], ['reviews.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('user_id', 'review_id', name='uq_review_helpfulness')
                    )
    op.create_index('ix_review_helpfulness_id', 'review_helpfulness', ['id'])
    op.create_index('ix_review_helpfulness_user_id', 'review_helpfulness', ['user_id'])
    op.create_index('ix_review_helpfulness_review_id', 'review_helpfulness', ['review_id'])

    op.create_table('events',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('venue_id', sa.Integer(), nullable=False),
                    sa.Column('band_id', sa.Integer(), nullable=False),
                    sa.Column('event_date', sa.Date(), nullable=False),
                    sa.Column('event_name', sa.String(length=255), nullable=True),
                    sa.Column('created_by_user_id', sa.Integer(), nullable=True),
                    sa.Column('is_verified', sa.Boolean(), nullable=False,
                              server_default=sa.false()),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['venue_id'], ['venues.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['band_id'], ['bands.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id']),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('venue_id', 'band_id', 'event_date', name='uq_event')
                    )
    op.create_index('ix_events_id', 'events', ['id'])
    op.create_index('ix_events_venue_id', 'events', ['venue_id'])
    op.create_index('ix_events_band_id', 'events', ['band_id'])
    op.create_index('ix_events_event_date', 'events', ['event_date'])

    op.create_table('checkins',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('event_id', sa.Integer(), nullable=False),
                    sa.Column('venue_rating', sa.Integer(), nullable=True),
                    sa.Column('band_rating', sa.Integer(), nullable=True),
                    sa.Column('review_text', sa.Text(), nullable=True),
                    sa.Column('image_urls', sa.JSON(), nullable=True),
                    *_timestamps(),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['event_id'], ['events.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('user_id', 'event_id', name='uq_user_checkin'),
                    sa.CheckConstraint(
                        'venue_rating IS NULL OR (venue_rating >= 1 AND venue_rating <= 5)',
                        name='ck_checkin_venue_rating'),
                    sa.CheckConstraint(
                        'band_rating IS NULL OR (band_rating >= 1 AND band_rating <= 5)',
                        name='ck_checkin_band_rating')
                    )
    op.create_index('ix_checkins_id', 'checkins', ['id'])
    op.create_index('ix_checkins_user_id', 'checkins', ['user_id'])
    op.create_index('ix_checkins_event_id', 'checkins', ['event_id'])
    op.create_index('ix_checkins_created_at', 'checkins', ['created_at'])

    op.create_table('checkin_toasts',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('checkin_id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.ForeignKeyConstraint(['checkin_id'], ['checkins.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('checkin_id', 'user_id', name='uq_user_toast')
                    )
    op.create_index('ix_checkin_toasts_id', 'checkin_toasts', ['id'])
    op.create_index('ix_checkin_toasts_checkin_id', 'checkin_toasts', ['checkin_id'])
    op.create_index('ix_checkin_toasts_user_id', 'checkin_toasts', ['user_id'])

    op.create_table('checkin_comments',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('checkin_id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('comment_text', sa.Text(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.ForeignKeyConstraint(['checkin_id'], ['checkins.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id')
                    )
    op.create_index('ix_checkin_comments_id', 'checkin_comments', ['id'])
    op.create_index('ix_checkin_comments_checkin_id', 'checkin_comments', ['checkin_id'])
    op.create_index('ix_checkin_comments_user_id', 'checkin_comments', ['user_id'])
    op.create_index('ix_checkin_comments_created_at', 'checkin_comments', ['created_at'])

    op.create_table('badges',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('name', sa.String(length=100), nullable=False),
                    sa.Column('description', sa.Text(), nullable=True),
                    sa.Column('icon_url', sa.String(), nullable=True),
                    sa.Column('badge_type', sa.String(length=50), nullable=False),
                    sa.Column('requirement_value', sa.Integer(), nullable=False),
                    sa.Column('color', sa.String(length=20), nullable=True),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('name'),
                    sa.UniqueConstraint('badge_type', 'requirement_value',
                                        name='uq_badge_threshold')
                    )
    op.create_index('ix_badges_id', 'badges', ['id'])
    op.create_index('ix_badges_badge_type', 'badges', ['badge_type'])

    op.create_table('user_badges',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('user_id', sa.Integer(), nullable=False),
                    sa.Column('badge_id', sa.Integer(), nullable=False),
                    sa.Column('earned_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['badge_id'], ['badges.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('user_id', 'badge_id', name='uq_user_badge')
                    )
    op.create_index('ix_user_badges_id', 'user_badges', ['id'])
    op.create_index('ix_user_badges_user_id', 'user_badges', ['user_id'])
    op.create_index('ix_user_badges_badge_id', 'user_badges', ['badge_id'])

    op.create_table('user_followers',
                    sa.Column('id', sa.Integer(), nullable=False),
                    sa.Column('follower_id', sa.Integer(), nullable=False),
                    sa.Column('following_id', sa.Integer(), nullable=False),
                    sa.Column('created_at', sa.DateTime(timezone=True),
                              server_default=sa.func.now(), nullable=True),
                    sa.ForeignKeyConstraint(['follower_id'], ['users.id'], ondelete='CASCADE'),
                    sa.ForeignKeyConstraint(['following_id'], ['users.id'], ondelete='CASCADE'),
                    sa.PrimaryKeyConstraint('id'),
                    sa.UniqueConstraint('follower_id', 'following_id', name='uq_user_follower')
                    )
    op.create_index('ix_user_followers_id', 'user_followers', ['id'])
    op.create_index('ix_user_followers_follower_id', 'user_followers', ['follower_id'])
    op.create_index('ix_user_followers_following_id', 'user_followers', ['following_id'])


def downgrade() -> None:
    for table in (
        'user_followers', 'user_badges', 'badges', 'checkin_comments',
        'checkin_toasts', 'checkins', 'events', 'review_helpfulness',
        'reviews', 'bands', 'venues', 'users',
    ):
        op.drop_table(table)
