from django.urls import path
from . import backoffice, views

urlpatterns = [
    path('', views.home, name='home'),  # homepage
    path('search/', views.search, name='search'),
    path('categories/', views.categories, name='categories'),
    path('products/<int:pk>/', views.product_detail, name='product_detail'),

    path('login/', views.login_view, name='login'),
    path('register/', views.register, name='register'),
    path('logout/', views.logout_view, name='logout'),
    path('profile/', views.profile, name='profile'),

    path('cart/', views.cart_view, name='cart'),
    path('cart/add/<int:product_id>/', views.add_to_cart, name='add_to_cart'),
    path('cart/remove/<int:product_id>/', views.remove_from_cart, name='remove_from_cart'),

    path('create-checkout-session/', views.create_checkout_session, name='create_checkout_session'),
    path('order/success/', views.order_success, name='order_success'),
    path('order/cancel/', views.order_cancel, name='order_cancel'),
    path('stripe-webhook/', views.stripe_webhook, name='stripe_webhook'),

    path('my-orders/', views.my_orders, name='my_orders'),
    path('my-orders/cancel/<int:pk>/', views.cancel_my_order, name='cancel_my_order'),
    path('invoice/<int:pk>/', views.invoice, name='invoice'),
    path('invoice/<int:pk>/pdf/', views.invoice_pdf, name='invoice_pdf'),

    # Back-office
    path('admin/products/', backoffice.product_list, name='admin_products'),
    path('admin/products/new/', backoffice.product_new, name='admin_product_new'),
    path('admin/products/edit/<int:pk>/', backoffice.product_edit, name='admin_product_edit'),
    path('admin/products/delete/<int:pk>/', backoffice.product_archive, name='admin_product_archive'),
    path('admin/products/restore/<int:pk>/', backoffice.product_restore, name='admin_product_restore'),
    path('admin/categories/', backoffice.category_list, name='admin_categories'),
    path('admin/orders/', backoffice.order_list, name='admin_orders'),
    path('admin/orders/ship/<int:pk>/', backoffice.order_ship, name='admin_order_ship'),
]
