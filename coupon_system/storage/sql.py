from typing import List, Optional

from sqlalchemy import and_, or_, update
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from coupon_system.core.exceptions import (
    CouponError,
    DuplicateCouponError,
    StorageError,
    UsageLimitExceeded,
    MAX_TOTAL_USAGE,
    MAX_USAGE_PER_USER,
)
from coupon_system.core.logging import get_logger
from coupon_system.models.coupon import Coupon, UserCouponUsage, utcnow
from coupon_system.storage.base import ApplicabilityFilter, CouponStorage, check_deadline

logger = get_logger(__name__)


class SQLCouponStore(CouponStorage):
    """CouponStorage on SQLModel. Each call runs in its own session."""

    def __init__(self, engine: Engine):
        self.engine = engine

    def create_coupon(self, coupon: Coupon, deadline: Optional[float] = None) -> Coupon:
        with Session(self.engine) as session:
            try:
                check_deadline(deadline, "create_coupon")
                session.add(coupon)
                session.flush()
                check_deadline(deadline, "create_coupon")
                session.commit()
                session.refresh(coupon)
            except IntegrityError as exc:
                session.rollback()
                existing = session.exec(
                    select(Coupon.id).where(Coupon.coupon_code == coupon.coupon_code)
                ).first()
                if existing is not None:
                    logger.warning("Coupon code %s already exists", coupon.coupon_code)
                    raise DuplicateCouponError(coupon.coupon_code) from exc
                logger.exception("Failed to create coupon %s", coupon.coupon_code)
                raise StorageError(f"failed to create coupon: {exc}") from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to create coupon %s", coupon.coupon_code)
                raise StorageError(f"failed to create coupon: {exc}") from exc
            except CouponError:
                session.rollback()
                raise
        return coupon

    def get_coupon_by_code(self, coupon_code: str, deadline: Optional[float] = None) -> Optional[Coupon]:
        check_deadline(deadline, "get_coupon_by_code")
        try:
            with Session(self.engine) as session:
                return session.exec(
                    select(Coupon).where(Coupon.coupon_code == coupon_code)
                ).first()
        except SQLAlchemyError as exc:
            logger.exception("Failed to fetch coupon %s", coupon_code)
            raise StorageError(f"error fetching coupon: {exc}") from exc

    def increment_usage(self, coupon_id: str, user_id: str, max_usage_per_user: int,
                        max_total_usage: int, deadline: Optional[float] = None) -> None:
        check_deadline(deadline, "increment_usage")
        with Session(self.engine) as session:
            try:
                conn = session.connection()

                # Updating the coupon row first takes its write lock, so every
                # increment for one coupon is serialized from here to commit.
                coupon_update = (
                    update(Coupon)
                    .where(Coupon.id == coupon_id)
                    .values(current_total_usage=Coupon.current_total_usage + 1, updated_at=utcnow())
                )
                if max_total_usage > 0:
                    coupon_update = coupon_update.where(Coupon.current_total_usage < max_total_usage)
                if conn.execute(coupon_update).rowcount == 0:
                    raise UsageLimitExceeded(MAX_TOTAL_USAGE)

                usage_match = and_(
                    UserCouponUsage.user_id == user_id,
                    UserCouponUsage.coupon_id == coupon_id,
                )
                usage_update = (
                    update(UserCouponUsage)
                    .where(usage_match)
                    .values(times_used=UserCouponUsage.times_used + 1)
                )
                if max_usage_per_user > 0:
                    usage_update = usage_update.where(UserCouponUsage.times_used < max_usage_per_user)

                if conn.execute(usage_update).rowcount == 0:
                    existing = session.exec(
                        select(UserCouponUsage.times_used).where(usage_match)
                    ).first()
                    if existing is not None:
                        raise UsageLimitExceeded(MAX_USAGE_PER_USER)
                    session.add(UserCouponUsage(user_id=user_id, coupon_id=coupon_id, times_used=1))
                    session.flush()

                check_deadline(deadline, "increment_usage")
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.exception("Failed to increment usage of coupon %s for user %s", coupon_id, user_id)
                raise StorageError(f"error updating coupon usage: {exc}") from exc
            except CouponError:
                session.rollback()
                raise

    def get_user_usage(self, user_id: str, coupon_id: str, deadline: Optional[float] = None) -> int:
        check_deadline(deadline, "get_user_usage")
        try:
            with Session(self.engine) as session:
                times_used = session.exec(
                    select(UserCouponUsage.times_used).where(
                        UserCouponUsage.user_id == user_id,
                        UserCouponUsage.coupon_id == coupon_id,
                    )
                ).first()
        except SQLAlchemyError as exc:
            logger.exception("Failed to get usage of coupon %s for user %s", coupon_id, user_id)
            raise StorageError(f"failed to get user usage for coupon: {exc}") from exc
        return times_used or 0

    def get_applicable_coupons(self, applicability: ApplicabilityFilter,
                               deadline: Optional[float] = None) -> List[Coupon]:
        """
        Time, order value and global cap are filtered in SQL; targeting in
        process. Per-user caps are left to the caller.
        """
        check_deadline(deadline, "get_applicable_coupons")
        ts = applicability.timestamp
        query = (
            select(Coupon)
            .where(Coupon.expiry_date >= ts)
            .where(Coupon.min_order_value <= applicability.order_total)
            .where(or_(Coupon.max_total_usage == 0, Coupon.current_total_usage < Coupon.max_total_usage))
            .where(or_(Coupon.valid_time_window_start == None, Coupon.valid_time_window_start <= ts))  # noqa: E711
            .where(or_(Coupon.valid_time_window_end == None, Coupon.valid_time_window_end >= ts))  # noqa: E711
            .order_by(Coupon.created_at)
        )
        try:
            with Session(self.engine) as session:
                coupons = session.exec(query).all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to query applicable coupons")
            raise StorageError(f"error fetching applicable coupons: {exc}") from exc

        medicine_ids = set(applicability.medicine_ids)
        categories = set(applicability.categories)
        return [
            coupon for coupon in coupons
            if not coupon.is_targeted
            or medicine_ids.intersection(coupon.applicable_medicine_ids)
            or categories.intersection(coupon.applicable_categories)
        ]

    def list_coupons(self, deadline: Optional[float] = None) -> List[Coupon]:
        check_deadline(deadline, "list_coupons")
        try:
            with Session(self.engine) as session:
                return list(session.exec(select(Coupon).order_by(Coupon.created_at)).all())
        except SQLAlchemyError as exc:
            logger.exception("Failed to list coupons")
            raise StorageError(f"error listing coupons: {exc}") from exc
