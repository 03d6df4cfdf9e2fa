"""
Services for public facilities.

Includes:
- LocationResolverService: reverse geocoding via OpenStreetMap Nominatim
- RatingService: keeps a facility's rating aggregate in line with its reviews
- facility_statistics: counts for the government dashboard
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

import requests
from django.conf import settings
from django.db import transaction
from django.db.models import Avg, Count

from audit.models import AuditLog, AuditEventType
from .models import Facility, FacilityReview, FacilityStatus

logger = logging.getLogger(__name__)


class LocationResolverService:
    """
    Resolves a readable address from GPS coordinates using Nominatim.

    Returns None on any failure so facility creation never waits on or
    fails because of the lookup.
    """

    ZOOM_LEVEL = 18

    @staticmethod
    def resolve_address(latitude, longitude):
        if not getattr(settings, 'NOMINATIM_ENABLED', False):
            return None

        try:
            if latitude is None or longitude is None:
                return None

            lat = float(latitude)
            lon = float(longitude)

            if not (-90 <= lat <= 90 and -180 <= lon <= 180):
                logger.warning(f"Invalid coordinates: lat={lat}, lon={lon}")
                return None

            params = {
                'format': 'json',
                'lat': lat,
                'lon': lon,
                'zoom': LocationResolverService.ZOOM_LEVEL,
                'addressdetails': 1,
            }

            logger.info(f"[LocationResolver] Resolving {lat}, {lon}")

            response = requests.get(
                settings.NOMINATIM_URL,
                params=params,
                timeout=settings.NOMINATIM_TIMEOUT_SECONDS,
                headers={'User-Agent': settings.NOMINATIM_USER_AGENT},
            )
            response.raise_for_status()

            data = response.json()
            address = data.get('address', {})

            parts = []
            for key in ['road', 'neighbourhood', 'suburb', 'city']:
                if address.get(key):
                    parts.append(address[key])

            if not parts:
                if address.get('state'):
                    parts.append(address['state'])
                if address.get('country'):
                    parts.append(address['country'])

            if parts:
                resolved = ', '.join(parts[:3])
                logger.info(f"[LocationResolver] Resolved: {resolved}")
                return resolved

            display_name = data.get('display_name')
            if display_name:
                return display_name[:255]

            logger.warning(f"[LocationResolver] No address found for {lat}, {lon}")
            return None

        except requests.Timeout:
            logger.warning(f"[LocationResolver] Nominatim timeout for {latitude}, {longitude}")
            return None
        except requests.RequestException as e:
            logger.warning(f"[LocationResolver] Nominatim error: {e}")
            return None
        except ValueError as e:
            logger.warning(f"[LocationResolver] Invalid response or coordinates: {e}")
            return None


class FacilityService:

    @staticmethod
    def create_facility(validated_data, user, request=None):
        data = dict(validated_data)
        if not data.get('address'):
            data['address'] = LocationResolverService.resolve_address(
                data.get('latitude'), data.get('longitude')
            ) or ''

        facility = Facility.objects.create(created_by=user, **data)

        AuditLog.log(
            event_type=AuditEventType.FACILITY_CREATED,
            actor=user,
            target=facility,
            request=request,
            success=True,
            description=f"Facility created: {facility.name}",
            metadata={'status': facility.status, 'has_location': facility.has_location}
        )
        return facility

    @staticmethod
    def update_facility(facility, validated_data, user, request=None):
        location_changed = False
        for field, value in validated_data.items():
            if field in ('latitude', 'longitude') and getattr(facility, field) != value:
                location_changed = True
            setattr(facility, field, value)

        if location_changed and 'address' not in validated_data:
            facility.address = LocationResolverService.resolve_address(
                facility.latitude, facility.longitude
            ) or ''

        facility.save()

        AuditLog.log(
            event_type=AuditEventType.FACILITY_UPDATED,
            actor=user,
            target=facility,
            request=request,
            success=True,
            description=f"Facility updated: {facility.name}",
            metadata={'fields': sorted(validated_data)}
        )
        return facility


class RatingService:

    @staticmethod
    def add_review(facility, user, score, comment='', request=None):
        """Store a review and refresh the facility's rating aggregate."""
        with transaction.atomic():
            review = FacilityReview.objects.create(
                facility=facility,
                author=user,
                score=score,
                comment=comment,
            )
            RatingService.recalculate(facility)

        AuditLog.log(
            event_type=AuditEventType.REVIEW_CREATED,
            actor=user,
            target=facility,
            request=request,
            success=True,
            description=f"Review ({score}/5) for {facility.name}",
            metadata={'review_id': str(review.id), 'score': score}
        )
        return review

    @staticmethod
    def remove_review(review, user=None, request=None):
        """Soft delete a review and take its score out of the aggregate."""
        facility = review.facility
        with transaction.atomic():
            review.soft_delete()
            RatingService.recalculate(facility)

        AuditLog.log(
            event_type=AuditEventType.REVIEW_DELETED,
            actor=user,
            target=facility,
            request=request,
            success=True,
            description=f"Review ({review.score}/5) removed from {facility.name}",
            metadata={'review_id': str(review.id), 'score': review.score}
        )
        return facility

    @staticmethod
    def recalculate(facility):
        aggregate = FacilityReview.objects.filter(facility=facility).aggregate(
            average=Avg('score'),
            count=Count('id'),
        )
        count = aggregate['count'] or 0
        average = Decimal(str(aggregate['average'] or 0)).quantize(
            Decimal('0.01'), rounding=ROUND_HALF_UP
        )

        Facility.objects.filter(pk=facility.pk).update(
            average_rating=average,
            total_ratings_count=count,
        )
        facility.average_rating = average
        facility.total_ratings_count = count
        return facility


def facility_statistics():
    qs = Facility.objects.all()
    by_status = {value: 0 for value, _ in FacilityStatus.CHOICES}
    for row in qs.values('status').annotate(count=Count('id')):
        by_status[row['status']] = row['count']

    return {
        'total': sum(by_status.values()),
        'active': by_status[FacilityStatus.ACTIVE],
        'by_status': by_status,
        'total_reviews': FacilityReview.objects.count(),
    }
