from django.contrib import admin

from .models import Facility, FacilityReview
from .services import RatingService


class FacilityReviewInline(admin.TabularInline):
    model = FacilityReview
    extra = 0
    can_delete = False
    fields = ['author', 'score', 'comment', 'created_at']
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Facility)
class FacilityAdmin(admin.ModelAdmin):
    list_display = ['name', 'status', 'average_rating', 'total_ratings_count', 'address', 'created_at']
    list_filter = ['status', 'created_at']
    search_fields = ['name', 'description', 'address']
    readonly_fields = ['id', 'average_rating', 'total_ratings_count', 'created_by', 'created_at', 'updated_at']
    inlines = [FacilityReviewInline]


@admin.register(FacilityReview)
class FacilityReviewAdmin(admin.ModelAdmin):
    list_display = ['facility', 'author', 'score', 'created_at']
    list_filter = ['score', 'created_at']
    search_fields = ['facility__name', 'author__email', 'comment']
    readonly_fields = ['id', 'facility', 'author', 'score', 'comment', 'created_at', 'updated_at']

    def has_change_permission(self, request, obj=None):
        return False

    def delete_model(self, request, obj):
        RatingService.remove_review(obj, request.user, request=request)

    def delete_queryset(self, request, queryset):
        for review in queryset.select_related('facility'):
            RatingService.remove_review(review, request.user, request=request)
