from django.urls import path
from . import admin_views, payment_views, views

urlpatterns = [
    # catalog
    path('api/wallpapers/', views.wallpaper_list, name='wallpaper_list'),
    path('api/wallpapers/mine/', views.my_wallpapers, name='my_wallpapers'),
    path('api/wallpapers/<int:pk>/', views.wallpaper_detail, name='wallpaper_detail'),
    path('api/wallpapers/<int:pk>/like/', views.toggle_like, name='toggle_like'),
    path('api/wallpapers/<int:pk>/delete/', views.delete_wallpaper, name='delete_wallpaper'),
    path('api/categories/', views.category_list, name='category_list'),

    # cart and checkout
    path('api/cart/', views.cart_view, name='cart'),
    path('api/cart/add/', views.add_to_cart, name='add_to_cart'),
    path('api/cart/update/', views.update_cart_item, name='update_cart_item'),
    path('api/cart/remove/', views.remove_from_cart, name='remove_from_cart'),
    path('api/cart/clear/', views.clear_cart_view, name='clear_cart'),
    path('api/checkout/', views.checkout, name='checkout'),

    path('api/orders/', views.my_orders, name='my_orders'),
    path('api/orders/cart-orders/', views.my_cart_orders, name='my_cart_orders'),
    path('api/user/', views.user_profile, name='user_profile'),

    # image generation
    path('api/imagine/', views.imagine_submit, name='imagine_submit'),
    path('api/imagine/status/<str:request_id>/', views.imagine_status, name='imagine_status'),
    path('api/imagine/results/<str:request_id>/', views.imagine_results, name='imagine_results'),
    path('api/imagine/save/', views.imagine_save, name='imagine_save'),

    # stripe
    path('api/stripe/create-customer/', payment_views.create_customer, name='stripe_create_customer'),
    path('api/stripe/create-bank-account/', payment_views.create_bank_account, name='stripe_create_bank_account'),
    path('api/stripe/create-card-payment-method/', payment_views.create_card_payment_method,
         name='stripe_create_card_payment_method'),
    path('api/stripe/create-bank-payment-method/', payment_views.create_bank_payment_method,
         name='stripe_create_bank_payment_method'),
    path('api/stripe/get-bank-account-details/', payment_views.get_bank_account_details,
         name='stripe_get_bank_account_details'),
    path('api/stripe/get-payment-methods/', payment_views.get_payment_methods, name='stripe_get_payment_methods'),
    path('api/stripe/set-default-payment-method/', payment_views.set_default_payment_method,
         name='stripe_set_default_payment_method'),
    path('api/stripe/process-payment/', payment_views.process_payment, name='stripe_process_payment'),
    path('api/stripe/process-ach-deposit/', payment_views.process_ach_deposit, name='stripe_process_ach_deposit'),
    path('api/stripe/create-transaction/', payment_views.create_transaction, name='stripe_create_transaction'),

    # account mirror
    path('api/account/wallet/', payment_views.my_wallet, name='my_wallet'),
    path('api/account/payment-methods/', payment_views.my_payment_methods, name='my_payment_methods'),
    path('api/account/payment-methods/<str:payment_method_id>/delete/', payment_views.delete_payment_method,
         name='delete_payment_method'),

    # back office
    path('api/admin/wallpapers/', admin_views.wallpaper_rankings, name='admin_wallpapers'),
    path('api/admin/wallpapers/<int:pk>/ranking/', admin_views.update_wallpaper_ranking,
         name='admin_wallpaper_ranking'),
    path('api/admin/orders/', admin_views.order_list, name='admin_orders'),
    path('api/admin/orders/batch-status/', admin_views.update_multiple_order_status,
         name='admin_orders_batch_status'),
    path('api/admin/orders/<int:pk>/status/', admin_views.update_order_status, name='admin_order_status'),
    path('api/admin/stats/', admin_views.dashboard_stats, name='admin_stats'),
    path('api/admin/revenue/', admin_views.monthly_revenue, name='admin_revenue'),
    path('api/admin/users/', admin_views.users, name='admin_users'),
    path('api/admin/groups/add-user/', admin_views.add_user_to_group, name='admin_group_add_user'),
    path('api/admin/groups/remove-user/', admin_views.remove_user_from_group, name='admin_group_remove_user'),
    path('api/admin/groups/<str:group_name>/users/', admin_views.group_users, name='admin_group_users'),
    path('api/admin/devices/', admin_views.devices, name='admin_devices'),
]
