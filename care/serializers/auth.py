from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    password = serializers.CharField()

    def validate_username(self, v):
        return (v or '').strip()

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required.')
        return v

    def validate(self, attrs):
        if not attrs.get('username') and not attrs.get('email'):
            raise serializers.ValidationError({'username': 'Username or email is required.'})
        return attrs
