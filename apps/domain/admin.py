from django.contrib import admin
from .models import Organization, Member, Document, SignatureRequest, Signer, Signature, Notification, ActivityLog


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'created_at']
    search_fields = ['name', 'email']
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('name', 'email')
        }),
        ('Armazenamento', {
            'fields': ('storage_config',)
        }),
        ('Datas', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Member)
class MemberAdmin(admin.ModelAdmin):
    list_display = ['user', 'role', 'organization', 'created_at']
    list_filter = ['role', 'organization']
    search_fields = ['user__username', 'user__email']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'organization', 'storage_backend', 'mime_type', 'created_at']
    list_filter = ['storage_backend', 'created_at', 'organization']
    search_fields = ['name', 'file_url']
    readonly_fields = ['created_at', 'updated_at']
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('name', 'organization', 'mime_type', 'uploaded_by')
        }),
        ('Armazenamento', {
            'fields': ('storage_backend', 'file_url', 'file')
        }),
        ('Datas', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


class SignerInline(admin.TabularInline):
    model = Signer
    extra = 0
    fields = ['sequence', 'name', 'email', 'user', 'status', 'is_implicit', 'signed_at']
    readonly_fields = ['status', 'is_implicit', 'signed_at']


@admin.register(SignatureRequest)
class SignatureRequestAdmin(admin.ModelAdmin):
    list_display = ['title', 'organization', 'document', 'status', 'completed_count', 'signer_count', 'requested_at']
    list_filter = ['status', 'require_all', 'require_sequential', 'requested_at', 'organization']
    search_fields = ['title', 'document__name']
    # Estado e hashes só mudam pelo fluxo de assinatura
    readonly_fields = [
        'status', 'requested_at', 'signed_at', 'signed_by', 'document_hash', 'signed_document_hash',
        'signer_count', 'completed_count', 'updated_at'
    ]
    inlines = [SignerInline]
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('title', 'description', 'organization', 'document', 'requested_by', 'expires_at')
        }),
        ('Política de Assinatura', {
            'fields': ('require_all', 'require_sequential', 'signer_count', 'completed_count')
        }),
        ('Status', {
            'fields': ('status', 'signed_at', 'signed_by')
        }),
        ('Integridade', {
            'fields': ('document_hash', 'signed_document_hash')
        }),
        ('Datas', {
            'fields': ('requested_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(Signer)
class SignerAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'request', 'sequence', 'status', 'created_at']
    list_filter = ['status', 'is_implicit', 'created_at']
    search_fields = ['name', 'email', 'request__title']
    readonly_fields = ['status', 'decline_reason', 'signed_at', 'notified_at', 'created_at', 'updated_at']


@admin.register(Signature)
class SignatureAdmin(admin.ModelAdmin):
    list_display = ['legal_name', 'request', 'signature_type', 'user', 'timestamp']
    list_filter = ['signature_type', 'timestamp']
    search_fields = ['legal_name', 'request__title']

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ['title', 'recipient', 'type', 'is_read', 'created_at']
    list_filter = ['type', 'is_read', 'created_at']
    search_fields = ['title', 'message', 'recipient__username']
    readonly_fields = ['created_at']


@admin.register(ActivityLog)
class ActivityLogAdmin(admin.ModelAdmin):
    list_display = ['action', 'resource_type', 'resource_id', 'actor', 'organization', 'created_at']
    list_filter = ['action', 'resource_type', 'created_at']
    search_fields = ['action', 'resource_name']
    readonly_fields = ['created_at']
