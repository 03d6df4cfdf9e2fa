"""
Public facility models.

- Facility: a park, road segment, building or other public asset
- FacilityReview: one citizen rating (1-5) per facility

average_rating and total_ratings_count are derived from the reviews and
recomputed by facilities.services.RatingService.
"""

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from core.models import BaseModel


class FacilityStatus:
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    MAINTENANCE = 'maintenance'

    CHOICES = [
        (ACTIVE, 'Active'),
        (INACTIVE, 'Inactive'),
        (MAINTENANCE, 'Under Maintenance'),
    ]


class Facility(BaseModel):
    name = models.CharField(max_length=200)

    description = models.TextField(blank=True)

    photo_url = models.URLField(max_length=500, blank=True)

    latitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('-90')), MaxValueValidator(Decimal('90'))]
    )

    longitude = models.DecimalField(
        max_digits=9,
        decimal_places=6,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('-180')), MaxValueValidator(Decimal('180'))]
    )

    address = models.CharField(
        max_length=255,
        blank=True,
        help_text="Address resolved from the coordinates"
    )

    status = models.CharField(
        max_length=20,
        choices=FacilityStatus.CHOICES,
        default=FacilityStatus.ACTIVE,
        db_index=True
    )

    average_rating = models.DecimalField(
        max_digits=3,
        decimal_places=2,
        default=Decimal('0.00')
    )

    total_ratings_count = models.PositiveIntegerField(default=0)

    created_by = models.ForeignKey(
        'authentication.User',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_facilities'
    )

    class Meta:
        db_table = 'facilities'
        verbose_name = 'Facility'
        verbose_name_plural = 'Facilities'
        ordering = ['name']

    def __str__(self):
        return self.name

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None


class FacilityReview(BaseModel):
    facility = models.ForeignKey(
        Facility,
        on_delete=models.CASCADE,
        related_name='reviews'
    )

    author = models.ForeignKey(
        'authentication.User',
        on_delete=models.CASCADE,
        related_name='facility_reviews'
    )

    score = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(5)]
    )

    comment = models.TextField(blank=True)

    class Meta:
        db_table = 'facility_reviews'
        verbose_name = 'Facility Review'
        verbose_name_plural = 'Facility Reviews'
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['facility', 'author'],
                condition=models.Q(is_deleted=False),
                name='one_review_per_author'
            ),
        ]

    def __str__(self):
        return f"{self.facility_id}: {self.score}"
