from django.urls import path
from crm import views

# 所有接口都是 CRM Gateway 前面的一层 JSON API：
# 请求体 -> serializers 校验 -> adapters 转成 Gateway 格式 -> gateway 转发
# Gateway 返回 -> adapters 转成 UI 格式 -> JSON
urlpatterns = [
    path('api/health/', views.health, name='health'),
    path('api/auth/login/', views.login, name='login'),
    path('api/auth/check/', views.check_auth, name='check_auth'),
    path('api/patients/', views.patients, name='patients'),
    path('api/patients/<str:patient_id>/', views.patient_detail, name='patient_detail'),
    path('api/appointments/', views.appointments, name='appointments'),
    path('api/appointments/search/', views.search_appointments, name='search_appointments'),
    path('api/appointments/<str:appointment_id>/', views.appointment_detail, name='appointment_detail'),
    path('api/dashboard/stats/', views.dashboard_stats, name='dashboard_stats'),
    path('api/dashboard/activity/', views.dashboard_activity, name='dashboard_activity'),
    path('api/dashboard/today-appointments/', views.today_appointments, name='today_appointments'),
    path('api/reports/daily/', views.daily_report, name='daily_report'),
    path('api/templates/', views.templates, name='templates'),
    path('api/templates/<str:template_id>/', views.template_detail, name='template_detail'),
    path('api/campaigns/', views.campaigns, name='campaigns'),
    path('api/campaigns/<str:campaign_id>/', views.campaign_detail, name='campaign_detail'),
    path('api/campaigns/<str:campaign_id>/send/', views.send_campaign, name='send_campaign'),
    path('api/team/', views.team, name='team'),
    path('api/team/<str:member_id>/', views.team_member, name='team_member'),
    path('metrics', views.metrics, name='metrics'),
]
